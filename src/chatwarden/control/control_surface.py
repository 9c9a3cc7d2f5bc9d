"""
Administrative operations over the moderation state.

Every operation returns a :class:`ControlResult`. Malformed input is rejected
before any state is touched, and unexpected errors are converted into failed
results instead of propagating to the caller.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, Dict, List

from chatwarden.datatypes.control_datatypes import ClearScope, ControlResult
from chatwarden.state.state_manager import StateManager
from chatwarden.util.logger import get_logger

logger = get_logger("control_surface")


def _guarded(operation: Callable[..., ControlResult]) -> Callable[..., ControlResult]:
    @functools.wraps(operation)
    def wrapper(*args: Any, **kwargs: Any) -> ControlResult:
        try:
            return operation(*args, **kwargs)
        except Exception as exc:
            logger.exception("[CONTROL SURFACE] %s failed: %s", operation.__name__, exc)
            return ControlResult.fail(f"Erro interno: {exc}")
    return wrapper


class ControlSurface:
    """Administrative facade used by the interactive console."""

    def __init__(self, state: StateManager):
        self.state = state

    @_guarded
    def get_status(self) -> ControlResult:
        return ControlResult.ok(
            status=str(self.state.connection_state),
            activeGroupsCount=len(self.state.active_groups),
            totalGroups=len(self.state.known_groups),
        )

    @_guarded
    def list_groups(self) -> ControlResult:
        """Known groups plus any active group the gateway has not reported."""
        groups: List[Dict[str, Any]] = [
            {
                "id": info.group_id,
                "name": info.name,
                "active": self.state.is_active(info.group_id),
                "participants": info.participants,
            }
            for info in self.state.known_groups.values()
        ]
        for group_id in self.state.active_groups:
            if group_id not in self.state.known_groups:
                groups.append({"id": group_id, "name": group_id, "active": True, "participants": 0})
        return ControlResult.ok(groups=groups)

    @_guarded
    def toggle_group(self, group_id: Any, active: Any) -> ControlResult:
        if not isinstance(group_id, str) or not group_id.strip():
            return ControlResult.fail("Identificador de grupo inválido")
        if not isinstance(active, bool):
            return ControlResult.fail("O campo 'active' deve ser verdadeiro ou falso")

        self.state.set_group_active(group_id.strip(), active)
        return ControlResult.ok(f"Grupo {'ativado' if active else 'desativado'} com sucesso!")

    @_guarded
    def get_blocked_words(self) -> ControlResult:
        return ControlResult.ok(words=self.state.offensive_words)

    @_guarded
    def set_blocked_words(self, words: Any) -> ControlResult:
        if not isinstance(words, list) or not all(isinstance(word, str) for word in words):
            return ControlResult.fail("Formato inválido: envie uma lista de palavras")

        cleaned = [word.strip() for word in words if word.strip()]
        self.state.set_offensive_words(cleaned)
        return ControlResult.ok("Palavras atualizadas!", words=cleaned)

    @_guarded
    def get_stats(self) -> ControlResult:
        return ControlResult.ok(
            activeGroups=len(self.state.active_groups),
            totalGroups=len(self.state.known_groups),
            totalInteractions=sum(self.state.interactions.values()),
            totalWarnings=sum(self.state.warnings.values()),
            offensiveWordsCount=len(self.state.offensive_words),
        )

    @_guarded
    def clear_data(self, scope: Any) -> ControlResult:
        try:
            resolved = scope if isinstance(scope, ClearScope) else ClearScope(scope)
        except ValueError:
            valid = ", ".join(s.value for s in ClearScope)
            return ControlResult.fail(f"Tipo de limpeza inválido: {scope!r} (use {valid})")

        if resolved is ClearScope.INTERACTIONS:
            self.state.clear_interactions()
        elif resolved is ClearScope.WARNINGS:
            self.state.clear_warnings_all()
        else:
            self.state.clear_all()
        return ControlResult.ok("Dados limpos com sucesso!", scope=resolved.value)

    @_guarded
    def clear_user_warnings(self, user_id: Any) -> ControlResult:
        if not isinstance(user_id, str) or not user_id.strip():
            return ControlResult.fail("Identificador de usuário inválido")
        self.state.clear_warnings(user_id.strip())
        return ControlResult.ok("Avisos limpos!")
