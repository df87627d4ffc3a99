"""Particle data structures, Gadget and text readers, and field-file writers."""

__version__ = "0.1.0"

__all__ = [
    "vector",
    "particles",
    "options",
    "misc",
    "gadget_header",
    "text_input",
    "gadget_binary",
    "text_output",
    "gadget_reader",
    "gadget_mog",
    "density_file",
    "text_sampling",
    "text_cone",
]