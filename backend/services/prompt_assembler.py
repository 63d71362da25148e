"""Prompt assembly for retrieval-augmented generation."""
import logging
from typing import List, Optional, Sequence

from models.conversation import ConversationTurn, USER
from models.retrieval import AssembledPrompt, RetrievalResult
from config import SYSTEM_PROMPT, MAX_HISTORY_ENTRIES

logger = logging.getLogger(__name__)

CITATION_INSTRUCTION = "\nCite your sources as [n], matching the numbered blocks below."
DOCUMENTS_INTRO = "Here are relevant passages from the knowledge base:"


class PromptAssembler:
    """Builds the text prompt sent to the generation backend."""

    def __init__(self, default_system_prompt: str = SYSTEM_PROMPT, max_history_turns: int = MAX_HISTORY_ENTRIES):
        """
        Args:
            default_system_prompt: Used when a request carries no system prompt
            max_history_turns: Most recent history turns kept in the transcript
        """
        self.default_system_prompt = default_system_prompt
        self.max_history_turns = max_history_turns

    def assemble(
        self,
        message: str,
        history: Optional[Sequence[ConversationTurn]],
        system_prompt: Optional[str],
        retrieval: RetrievalResult
    ) -> AssembledPrompt:
        """
        Combine system prompt, retrieved context and conversation into one prompt.

        The transcript ends with an open `<assistant>` block for the model to
        continue from.

        Args:
            message: Current user message
            history: Previous turns, most recent last
            system_prompt: Optional per-request system prompt
            retrieval: Context block and sources for the message

        Returns:
            AssembledPrompt with the prompt text and the retrieval sources
        """
        active_system_prompt = self.resolve_system_prompt(system_prompt) + CITATION_INSTRUCTION

        turns = self.sanitize_history(history)
        history_section = "\n".join(_render_turn(turn) for turn in turns)
        conversation_block = "\n".join(
            part for part in (history_section, f"<user>\n{message}\n</user>", "<assistant>\n") if part
        )

        documents_context = (
            f"\n\n<documents>\n{DOCUMENTS_INTRO}\n\n{retrieval.context_block}\n</documents>"
        )

        prompt = (
            f"{active_system_prompt}{documents_context}\n\n"
            f"<conversation>\n{conversation_block}\n</conversation>"
        )

        logger.debug(
            f"Assembled prompt: {len(prompt)} characters, {len(turns)} history turns, "
            f"{len(retrieval.sources)} sources"
        )
        return AssembledPrompt(prompt=prompt, sources=list(retrieval.sources))

    def resolve_system_prompt(self, system_prompt: Optional[str]) -> str:
        if system_prompt and system_prompt.strip():
            return system_prompt.strip()
        return self.default_system_prompt

    def sanitize_history(self, history: Optional[Sequence[ConversationTurn]]) -> List[ConversationTurn]:
        """Keep the most recent turns, trimmed, dropping those left empty."""
        if not history:
            return []

        recent = list(history)[-self.max_history_turns:] if self.max_history_turns > 0 else []
        sanitized = []
        for turn in recent:
            content = turn.content.strip()
            if content:
                sanitized.append(ConversationTurn(role=turn.role, content=content))
        return sanitized


def _render_turn(turn: ConversationTurn) -> str:
    tag = "user" if turn.role == USER else "assistant"
    return f"<{tag}>\n{turn.content}\n</{tag}>"
