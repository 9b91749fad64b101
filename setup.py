from setuptools import setup, find_packages

setup(
    name="coding_tools",
    version="0.1.0",
    packages=find_packages(include=["coding_tools", "coding_tools.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pyyaml",
        "textual",
        "tqdm>=4.60",
        # Linear-time regex engine for caller-supplied patterns
        "google-re2>=1.1",
        # Tool payload validation / JSON schemas
        "pydantic>=2.0",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "coding-tools=coding_tools.cli:main",
        ],
    },
    author="Uday Kanth",
    description="Code search, diff review and atomic multi-file batch editing tools for coding agents.",
)
