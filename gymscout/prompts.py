"""System prompt for the Muay Thai gym scout."""

from datetime import datetime

from gymscout.traffic import BANGKOK

# UI turns |||Gym Name||| into a link to the gym card
GYM_DELIMITER = "|||"

NO_DATA_MESSAGE = "I don't have verified gym data right now. Please try again shortly."

SYSTEM_PROMPT_TEMPLATE = """You are an expert Muay Thai scout helping fighters choose a training camp in Thailand.

## Current Date & Time
It is **{current_date}** ({current_day_of_week}), **{current_time}** in Bangkok.

## Verified Gym Data
You have verified data on these gyms only. Each line is one gym:

---
{knowledge}
---

Verified gym names: {gym_names}

## Rules
- Keep replies short: no more than 3 sentences unless the user asks for detail.
- Never greet the user and never introduce yourself. Answer straight away.
- Only recommend gyms from the verified list above. Never invent a gym, a price, or a fact.
- Wrap every gym name you recommend in triple pipes, exactly like {delimiter}Gym Name{delimiter}.
- Where a field says "Contact for details", tell the user to contact the gym; never guess.
- If the user asks for a gym that is not in the verified list, or nothing in the list matches
  what they want, reply with exactly this sentence and nothing else:
  "{fallback}"
- You may share general Thailand training advice (visas, gear, climate), but keep it brief.
"""


def fallback_message(gym_names: list[str]) -> str:
    """The one sentence used when no verified gym matches the request."""
    if not gym_names:
        return NO_DATA_MESSAGE
    listed = ", ".join(f"{GYM_DELIMITER}{name}{GYM_DELIMITER}" for name in gym_names)
    return (
        f"I only have verified data on these gyms: {listed}. "
        "Would you like to hear about one of them?"
    )


def get_system_prompt(knowledge: str, gym_names: list[str], now: datetime | None = None) -> str:
    """Build the complete system prompt with the gym data and Bangkok time injected."""
    now = (now or datetime.now(BANGKOK)).astimezone(BANGKOK)
    return SYSTEM_PROMPT_TEMPLATE.format(
        knowledge=knowledge or "No gym data available currently.",
        gym_names=", ".join(gym_names) if gym_names else "none",
        delimiter=GYM_DELIMITER,
        fallback=fallback_message(gym_names),
        current_date=now.strftime("%d %B %Y"),
        current_day_of_week=now.strftime("%A"),
        current_time=now.strftime("%H:%M"),
    )
