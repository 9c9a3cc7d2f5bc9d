"""Setup configuration for the chatwarden group moderation bot."""

from setuptools import setup, find_packages

setup(
    name="chatwarden",
    version="0.0.1",
    description="A group chat bot that moderates offensive words and links and tracks member engagement",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.5",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "aiosqlite>=0.19",
        "Pillow>=10.0",
        "pillow-heif>=0.16",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatwarden=chatwarden.main:main",
        ],
    },
)
