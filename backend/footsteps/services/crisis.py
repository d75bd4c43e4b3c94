"""
Local crisis keyword screen
"""

CRISIS_KEYWORDS = (
    "kill myself",
    "suicide",
    "self-harm",
    "end it all",
    "give up",
    "no reason",
    "hurt myself",
    "want to die",
    "overdose",
    "999",
)


def check_crisis_status(text: str) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in CRISIS_KEYWORDS)
