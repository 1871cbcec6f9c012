"""IdealX Bot - A Discord bot that answers in threads using an LLM.

Bridges the Discord gateway and the interactions webhook into one HTTP
endpoint, keeps per-conversation context and streams model replies.

Components:
- main_server: FastAPI app (webhook + health check) and process entry point
- gateway: long-lived gateway connection supervisor
- chat: Discord adapter (events, REST, threads, signature verification)
- bot: event routing and handlers
- commands: slash command handlers
- context: conversation window assembly and reset markers
- llm: OpenAI client wrapper
- retrieval: URL content fetching
"""
