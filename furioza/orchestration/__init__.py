"""Orchestration layer - thread moderation state machine."""

from furioza.orchestration.state_machine import (
    ModerationAction,
    ModerationStateMachine,
    ThreadState,
    compose_post_content,
    valid_actions,
)

__all__ = [
    "ModerationAction",
    "ModerationStateMachine",
    "ThreadState",
    "compose_post_content",
    "valid_actions",
]
