"""Public API for diascript."""
from .connectors import Line
from .description import load_diagram, load_diagram_file
from .diagram import Diagram, Placement, RenderResult, canvas_size, render_svg
from .elements import Element, to_svg
from .errors import ConfigurationError, DiascriptError, LayoutError, MeasurementError
from .markers import Marker, load_markers
from .measure import TextMeasurer
from .shapes import Box, Circle, Database, Ellipse, Hbox, Shape, Text, User, Vbox
from .style import Padding

__all__ = [
    "Box",
    "Circle",
    "ConfigurationError",
    "Database",
    "Diagram",
    "DiascriptError",
    "Element",
    "Ellipse",
    "Hbox",
    "LayoutError",
    "Line",
    "Marker",
    "MeasurementError",
    "Padding",
    "Placement",
    "RenderResult",
    "Shape",
    "Text",
    "TextMeasurer",
    "User",
    "Vbox",
    "canvas_size",
    "load_diagram",
    "load_diagram_file",
    "load_markers",
    "render_svg",
    "to_svg",
]
