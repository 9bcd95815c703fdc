"""A small 3D scene editor for glTF models, with cameras, rendering and a command console."""

__version__ = "0.1.0"