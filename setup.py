from setuptools import find_packages
from setuptools import setup


setup(
    name="frontline-otel",
    version="1.0.0",
    description="Hand-written OTLP protobuf encoder and exporter for trace spans",
    license="Apache 2",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.8",
    install_requires=[
        "attrs>=20",
        "envier>=0.5",
    ],
    extras_require={
        "test": [
            "hypothesis",
            "mock",
            "opentelemetry-proto>=1.20",
            "protobuf",
            "pytest",
            "riot",
        ],
    },
    zip_safe=False,
)
