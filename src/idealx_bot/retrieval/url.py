import re
from typing import List
from ..config import get_settings

settings = get_settings()

# Basic regex for URLs (http/https)
URL_REGEX = re.compile(r'https?://[^\s<>)]+')

def extract_urls(text: str) -> List[str]:
    """
    Extracts URLs from text in order of appearance, capped at MAX_LINKS_PER_MESSAGE.
    """
    return URL_REGEX.findall(text or "")[:settings.MAX_LINKS_PER_MESSAGE]
