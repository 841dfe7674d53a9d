# setup.py
"""Setup script for Flow Canvas."""

from setuptools import setup, find_packages

setup(
    name="flowcanvas",
    version="1.0.0",
    packages=find_packages(include=["flowcanvas", "flowcanvas.*", "cli", "cli.*"]),
    include_package_data=True,
    install_requires=[
        "click>=8.0",
        "pyyaml>=6.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "structlog>=23.1",
        "aiosqlite>=0.19",
        "typing-extensions>=4.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "black>=23.0",
            "flake8>=6.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "flowcanvas=cli.main:cli",
            "fc=cli.main:cli",  # Short alias
        ],
    },
    python_requires=">=3.9",
)
