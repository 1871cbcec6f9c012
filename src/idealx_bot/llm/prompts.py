import yaml
from pathlib import Path
from functools import lru_cache

PROMPTS_DIR = Path(__file__).resolve().parents[3] / "data" / "prompts"

@lru_cache()
def load_prompt(name: str) -> str:
    # Prioritize .yaml for structured prompts
    yaml_path = PROMPTS_DIR / f"{name}.yaml"
    if yaml_path.exists():
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data.get("content", "")

    # Fallback to .md
    md_path = PROMPTS_DIR / f"{name}.md"
    if md_path.exists():
        with open(md_path, "r", encoding="utf-8") as f:
            return f.read()

    raise FileNotFoundError(f"Prompt {name} not found as .yaml or .md")


SUMMARY_INSTRUCTION = "以下の会話を簡潔に要約してください。要約のみを出力してください。"

URL_SUMMARY_INSTRUCTION = "メッセージの内容とURLの情報を簡潔にまとめてください。要約のみを出力してください。"


def translation_instruction(language: str) -> str:
    return f"以下のテキストを{language}に翻訳してください。翻訳文のみを出力してください。"


def forum_section(title: str | None, description: str | None) -> str:
    """System prompt suffix describing the forum post being answered."""
    if not title and not description:
        return ""
    section = "\n\n--- フォーラム情報 ---"
    if title:
        section += f"\nタイトル: {title}"
    if description:
        section += f"\n説明: {description}"
    return section
