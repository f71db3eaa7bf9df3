"""Default classes and props for the NiceGUI widgets used by the control panel."""

from __future__ import annotations

from nicegui import ui

from statwidgets.utils.logging import get_logger

logger = get_logger(__name__)

# Tailwind text size -> Quasar size
QUASAR_SIZES = {
    "text-xs": "xs",
    "text-sm": "sm",
    "text-base": "md",
    "text-lg": "lg",
}


def set_up_gui_defaults(text_size: str = "text-sm") -> None:
    """Apply a dense style to labels, buttons, checkboxes, switches, selects and toggles.

    Args:
        text_size: Tailwind CSS text size class ('text-xs', 'text-sm', 'text-base', 'text-lg').

    Raises:
        ValueError: If text_size is not one of the supported classes.
    """
    if text_size not in QUASAR_SIZES:
        raise ValueError(f"text_size must be one of {sorted(QUASAR_SIZES)}, got {text_size!r}")
    quasar_size = QUASAR_SIZES[text_size]
    logger.debug(f'using classes text_size:"{text_size}" quasar size:{quasar_size}')

    ui.label.default_classes(f"{text_size} select-text")
    ui.label.default_props("dense")

    ui.button.default_classes(text_size)
    ui.button.default_props("dense")

    ui.checkbox.default_classes(text_size)
    ui.checkbox.default_props(f"dense size={quasar_size}")

    ui.switch.default_classes(text_size)
    ui.switch.default_props(f"dense size={quasar_size}")

    ui.select.default_classes(text_size)
    ui.select.default_props("dense")

    ui.toggle.default_classes(text_size)
    ui.toggle.default_props("dense")
