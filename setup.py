"""Setup configuration for apiweave."""

from setuptools import find_packages, setup

setup(
    name="apiweave",
    version="0.1.0",
    description="Flatten relational JSON APIs into records — cached, templated, pipelined",
    python_requires=">=3.11",
    packages=find_packages(where="src", include=["apiweave*"]),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27.0",
        "pandas>=2.2.0",
        "pydantic>=2.6.0",
        "pydantic-settings>=2.1.0",
    ],
    entry_points={
        "console_scripts": [
            "apiweave=apiweave.cli:cli_entry",
        ],
    },
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "respx>=0.21.0",
        ],
    },
)
