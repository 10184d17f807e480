"""Human-readable thread names."""

import re
import secrets

from coding_threads.platform.threads.errors import ThreadNameError

ADJECTIVES = (
    "amber", "ancient", "bold", "brave", "brisk", "calm", "clever", "cosmic",
    "crimson", "curious", "dapper", "dusty", "eager", "fancy", "fluffy", "gentle",
    "giddy", "golden", "grumpy", "happy", "hidden", "humble", "icy", "jolly",
    "lively", "lucky", "mellow", "misty", "nimble", "noisy", "plucky", "proud",
    "quiet", "rapid", "red", "rusty", "shiny", "silent", "sleepy", "sneaky",
    "snowy", "spicy", "stormy", "sunny", "sweaty", "swift", "tidy", "wild",
)

NOUNS = (
    "badger", "beacon", "biscuit", "canyon", "comet", "cricket", "falcon", "fern",
    "gecko", "glacier", "harbor", "heron", "island", "kettle", "lantern", "lemur",
    "marble", "meadow", "otter", "panda", "pebble", "pepper", "pickle", "potato",
    "puffin", "quokka", "raven", "river", "rocket", "saddle", "sparrow", "spruce",
    "teapot", "thistle", "tiger", "tulip", "turnip", "valley", "walrus", "willow",
)

_NAME_RE = re.compile(r"[a-zA-Z0-9_-]+")
MAX_NAME_LENGTH = 64


def generate_name() -> str:
    """Return a random adjective-adjective-noun name, e.g. "red-sweaty-potato"."""
    first = secrets.choice(ADJECTIVES)
    second = secrets.choice([adj for adj in ADJECTIVES if adj != first])
    return f"{first}-{second}-{secrets.choice(NOUNS)}"


def validate_name(name: str) -> None:
    """
    Validate that a name contains only alphanumeric characters, hyphens, and underscores.

    Args:
        name: The name to validate

    Raises:
        ThreadNameError: If the name is empty, too long or contains invalid characters
    """
    if not name:
        raise ThreadNameError("Name cannot be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise ThreadNameError(f"Name must be at most {MAX_NAME_LENGTH} characters")

    if not _NAME_RE.fullmatch(name):
        raise ThreadNameError(
            f"Invalid name '{name}'. Name must contain only alphanumeric characters, "
            "hyphens, and underscores"
        )
