from setuptools import setup, find_namespace_packages

setup(
    name="querybatch",
    version="0.1.0",
    packages=find_namespace_packages(include=["src.querybatch", "src.querybatch.*"]),
    install_requires=[
        "httpx",
        "pydantic",
        "pydantic-settings",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    python_requires=">=3.10",
)
