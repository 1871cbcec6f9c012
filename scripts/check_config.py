#!/usr/bin/env python3
"""
Quick check that the environment is configured before starting the bot.
"""
from dotenv import load_dotenv
import os

load_dotenv()

def check_env():
    """Check if required environment variables are set."""
    required = {
        "DISCORD_BOT_TOKEN": "Bot token (Developer Portal > Bot)",
        "DISCORD_PUBLIC_KEY": "Application public key (General Information)",
        "DISCORD_APPLICATION_ID": "Application ID (General Information)",
        "OPENAI_API_KEY": "OpenAI API key (sk-...)",
    }
    optional = {
        "TARGET_SERVER_IDS": "Comma-separated guild IDs for forum auto-response",
        "TARGET_FORUM_CHANNEL_IDS": "Comma-separated forum channel IDs",
        "DISCORD_MENTION_ROLE_IDS": "Roles whose mention counts as mentioning the bot",
        "PORT": "HTTP port (default 3000)",
    }

    print("=" * 60)
    print("IdealX Bot Configuration Check")
    print("=" * 60)

    all_good = True
    for var, description in required.items():
        value = os.getenv(var)
        if value:
            # Mask secrets
            if "TOKEN" in var or "KEY" in var:
                masked = value[:8] + "..." if len(value) > 8 else "***"
                print(f"✓ {var}: {masked}")
            else:
                print(f"✓ {var}: {value}")
        else:
            print(f"✗ {var}: NOT SET ({description})")
            all_good = False

    for var, description in optional.items():
        value = os.getenv(var)
        print(f"{'✓' if value else '-'} {var}: {value or f'not set ({description})'}")

    print("=" * 60)

    if all_good:
        print("\n✓ All required environment variables are set!")
        print("\nNext steps:")
        print("1. Register slash commands (once):")
        print("   python scripts/register_commands.py")
        print("\n2. Start the server (webhook + gateway listener):")
        print("   python -m idealx_bot.main_server")
        print("\n3. Expose the webhook and set it as the Interactions Endpoint URL:")
        print("   python scripts/run_ngrok.py")
    else:
        print("\n✗ Some environment variables are missing.")
        print("Please add them to your .env file.")
        print("\nExample .env:")
        print("DISCORD_BOT_TOKEN=your-bot-token")
        print("DISCORD_PUBLIC_KEY=your-public-key-hex")
        print("DISCORD_APPLICATION_ID=123456789012345678")
        print("OPENAI_API_KEY=sk-your-key")

    print()

if __name__ == "__main__":
    check_env()
