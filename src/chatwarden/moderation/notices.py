"""Chat-facing texts sent by the bot.

Mentions are written as ``@<handle>``; the gateway turns them into real
mentions for the identities passed alongside the text.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from chatwarden.datatypes.moderation_datatypes import NoticeLevel, ViolationKind, user_handle

RANKING_MEDALS = ["🥇", "🥈", "🥉", "🏅", "🎖️"]
RANKING_FALLBACK_MEDAL = "🔥"

WARNINGS_CLEARED_TEXT = "✅ Avisos limpos para o usuário mencionado!"
STICKER_CREATED_TEXT = (
    "🎨 *Figurinha criada com sucesso!* 🎨\n\n"
    "😂 Agora pode usar essa obra de arte nas conversas! 🎭"
)


def mention(identity: str) -> str:
    return f"@{user_handle(identity)}"


def render_violation_notice(level: NoticeLevel, sender_id: str, violation: ViolationKind) -> str:
    """Build the warning text for the given escalation level."""
    who = mention(sender_id)
    reason = violation.label

    if level is NoticeLevel.FIRST_WARNING:
        return (
            "⚠️ *Primeiro aviso!*\n\n"
            f"{who} por favor evite usar {reason} no grupo.\n\n"
            "🤝 Vamos manter o respeito entre todos!"
        )
    if level is NoticeLevel.SECOND_WARNING:
        return (
            "🚨 *Segundo aviso!*\n\n"
            f"{who} já te avisei sobre {reason}!\n\n"
            "😤 Se não parar, vai levar uma surra de chibata de boi! 🐂💢"
        )
    return (
        "💥 *TERCEIRO AVISO - CHIBATA DE BOI!* 💥\n\n"
        f"{who} EU AVISEI! \n\n"
        "🐂💢 *TOMOU CHIBATADA VIRTUAL!* 💢🐂\n"
        "*ZUPT ZUPT ZUPT ZUPT ZUPT!*\n\n"
        "🔥 Agora para com isso ou vai ser pior! \n"
        "(Avisos resetados, mas fique esperto!)"
    )


def render_ranking(entries: Sequence[Tuple[str, int]]) -> str:
    """Render the top-talkers list, or the "no activity yet" text when empty."""
    text = "🏆 *RANKING DOS MAIS ATIVOS* 🏆\n\n"

    if not entries:
        return text + "😴 Ninguém falou nada ainda...\nQuem vai quebrar o silêncio? 🤔"

    for index, (user_id, count) in enumerate(entries):
        medal = RANKING_MEDALS[index] if index < len(RANKING_MEDALS) else RANKING_FALLBACK_MEDAL
        text += f"{medal} {mention(user_id)} - {count} msgs\n\n"
    return text


def render_lurkers(entries: Sequence[Tuple[str, int]]) -> str:
    text = "👻 *GALERA DA TOCAIA* 👻\n\n"

    if not entries:
        return text + "🎉 Todo mundo participa aqui!\nNinguém tá de tocaia! 🗣️"

    text += "🕵️ Esses aqui só ficam espiando...\n\n"
    for user_id, count in entries:
        text += f"👤 {mention(user_id)} - {count} msgs\n\n"
    return text


def render_help(prefix: str = "!", sticker_keyword: str = "figurinha") -> str:
    return (
        "🤖 *BOT ADMINISTRADOR* 🤖\n\n"
        "📊 *Comandos:*\n"
        f"• {prefix}ranking - Ver os mais ativos\n"
        f"• {prefix}tocaia - Ver quem só observa\n"
        f"• {prefix}limpar @user - Limpar avisos\n"
        f"• {prefix}ajuda - Este menu\n\n"
        "🎨 *Figurinhas:*\n"
        f'Envie imagem + "{sticker_keyword}"\n\n'
        "⚠️ *Moderação automática ativa!*"
    )
