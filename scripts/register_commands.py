#!/usr/bin/env python3
"""
Register the bot's slash commands with Discord (global commands).
The definitions must stay in sync with idealx_bot.commands.dispatcher.

Usage:
    python scripts/register_commands.py
"""
import sys
import httpx
from idealx_bot.commands.dispatcher import LANGUAGES, MAX_SUMMARY_COUNT
from idealx_bot.config import get_settings

settings = get_settings()

# Application command option types
STRING = 3
INTEGER = 4
USER = 6

COMMANDS = [
    {
        "name": "help",
        "description": "IdealXの使い方を表示します",
    },
    {
        "name": "age",
        "description": "Discordアカウントの作成日と経過日数を表示します",
        "options": [
            {"name": "user", "description": "ユーザーを選択してください", "type": USER, "required": False},
        ],
    },
    {
        "name": "summarize",
        "description": "直近のメッセージをAIで要約します",
        "options": [
            {
                "name": "count",
                "description": f"要約するメッセージ数（1〜{MAX_SUMMARY_COUNT}、デフォルト: 10）",
                "type": INTEGER,
                "required": False,
                "min_value": 1,
                "max_value": MAX_SUMMARY_COUNT,
            },
        ],
    },
    {
        "name": "translate",
        "description": "テキストを指定した言語に翻訳します",
        "options": [
            {
                "name": "language",
                "description": "翻訳先の言語",
                "type": STRING,
                "required": True,
                "choices": [{"name": name, "value": key} for key, name in LANGUAGES.items()],
            },
            {"name": "text", "description": "翻訳するテキスト", "type": STRING, "required": True},
        ],
    },
    {
        "name": "clear",
        "description": "チャンネルの会話コンテキストをリセットします",
    },
]

def register_commands():
    url = f"{settings.DISCORD_API_BASE}/applications/{settings.DISCORD_APPLICATION_ID}/commands"
    resp = httpx.put(
        url,
        json=COMMANDS,
        headers={"Authorization": f"Bot {settings.DISCORD_BOT_TOKEN}"},
        timeout=30.0,
    )
    if resp.is_success:
        print(f"✓ Registered {len(resp.json())} slash commands.")
    else:
        print(f"✗ Command registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)

if __name__ == "__main__":
    register_commands()
