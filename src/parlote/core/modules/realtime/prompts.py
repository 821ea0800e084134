"""Model instructions for tutoring sessions."""

from parlote.core.modules.situation.models import Situation

TUTOR_PREAMBLE = " ".join(
    [
        "You are a friendly French conversation tutor for native Portuguese speakers.",
        "Use simple, clear French. If the learner makes mistakes, correct them gently in Portuguese.",
        "Ask short questions, keep the pace natural, and encourage the learner to respond aloud.",
        "Stay inside the situation and keep role-play going.",
    ]
)


def build_instructions(situation: Situation, prompt_override: str | None = None) -> str:
    """Compose instructions from the tutor preamble, the situation and an optional custom block.

    The override is layered on top of the situation prompt, never in place of it.
    """
    blocks = [
        TUTOR_PREAMBLE,
        f"Situation: {situation.title}",
        f"Theme: {situation.theme}",
        f"Scenario: {situation.prompt}",
    ]

    if prompt_override and prompt_override.strip():
        blocks.append(f"Custom instructions: {prompt_override.strip()}")

    return "\n\n".join(blocks)
