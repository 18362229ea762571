"""Bind every button of an inline keyboard to the user it is shown to."""

from __future__ import annotations

from typing import Any, Optional

from .token.binding import UserId
from .token.codec import try_decode
from .wrapper import CallbackWrapper

Keyboard = dict[str, Any]


def bind_keyboard(
    keyboard: Optional[Keyboard],
    *,
    wrapper: CallbackWrapper,
    user_id: Optional[UserId],
    keyboard_nonce: Optional[str],
    ttl_seconds: Optional[int] = None,
) -> Optional[Keyboard]:
    """Wrap each plain ``callback_data`` in a Bot API ``inline_keyboard`` mapping.

    Buttons that are already wrapped, surrogate tokens and buttons without
    callback data (URL buttons and the like) are left as they are. The input
    is returned unchanged when the user has no id or nonce, or when no button
    needed wrapping.
    """
    if not keyboard or not keyboard.get("inline_keyboard"):
        return keyboard
    if not user_id or not keyboard_nonce:
        return keyboard

    changed = False
    rows = []
    for row in keyboard["inline_keyboard"]:
        new_row = []
        for button in row:
            data = button.get("callback_data")
            if not isinstance(data, str) or not data or wrapper.is_surrogate(data) or try_decode(data).ok:
                new_row.append(button)
                continue
            wrapped = wrapper.wrap(
                data,
                user_id=user_id,
                keyboard_nonce=keyboard_nonce,
                bind_to_user=True,
                ttl_seconds=ttl_seconds,
            )
            if wrapped == data:
                new_row.append(button)
                continue
            changed = True
            new_row.append({**button, "callback_data": wrapped})
        rows.append(new_row)

    if not changed:
        return keyboard
    return {**keyboard, "inline_keyboard": rows}
