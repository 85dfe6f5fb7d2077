import json
from importlib import resources


def load_marker_definitions() -> dict:
    with resources.files(__package__).joinpath("data/markers.json").open("r", encoding="utf-8") as fh:
        return json.load(fh)
