# type: ignore
from typing import List  # noqa
from typing import Tuple  # noqa

from riot import Venv


latest = ""


SUPPORTED_PYTHON_VERSIONS: List[Tuple[int, int]] = [
    (3, 8),
    (3, 9),
    (3, 10),
    (3, 11),
    (3, 12),
    (3, 13),
]  # type: List[Tuple[int, int]]


def version_to_str(version: Tuple[int, int]) -> str:
    """Convert a Python version tuple to a string

    >>> version_to_str((3, 8))
    '3.8'
    >>> version_to_str((3, ))
    '3'
    """
    return ".".join(str(p) for p in version)


def select_pys() -> List[str]:
    return [version_to_str(version) for version in SUPPORTED_PYTHON_VERSIONS]


venv = Venv(
    pkgs={
        "pytest": latest,
        "hypothesis": latest,
        "mock": latest,
        "opentelemetry-proto": latest,
        "protobuf": latest,
    },
    env={
        "FRONTLINE_OTEL_LOGGING_RATE": "0",
    },
    venvs=[
        Venv(
            name="internal",
            pys=select_pys(),
            command="pytest {cmdargs} tests/internal/",
        ),
        Venv(
            name="tracer",
            pys=select_pys(),
            command="pytest {cmdargs} tests/tracer/",
        ),
        Venv(
            name="settings",
            pys=select_pys(),
            command="pytest {cmdargs} tests/settings/",
        ),
    ],
)
