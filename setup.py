from setuptools import setup, find_packages

setup(
    name="medivoice",
    version="0.1.0",
    description="Medical dictation transcription and streaming clinical report generation",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.8.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "rich>=12.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "medivoice=medivoice.main:main",
        ],
    },
)
