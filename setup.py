"""Setup script for context-fetcher"""
from setuptools import setup
from pathlib import Path
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""
setup(
    name="context-fetcher",
    version="1.0.0",
    author="Context Fetcher Project",
    author_email="info@context-fetcher.dev",
    description="Download coding, design, SEO, accessibility, content and performance standards as AI context",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Mahusaa/Database-Readme",
    project_urls={
        "Bug Reports": "https://github.com/Mahusaa/Database-Readme/issues",
        "Source": "https://github.com/Mahusaa/Database-Readme",
    },
    py_modules=["context_fetcher"],
    python_requires=">=3.8",
    install_requires=["requests>=2.25.0", "rich>=12.0.0"],
    extras_require={
        "dev": ["pytest>=6.0.0", "black>=22.0.0", "flake8>=4.0.0", "pytest-asyncio"],
    },
    entry_points={
        "console_scripts": [
            "context-fetcher=context_fetcher:cli_main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Documentation",
        "Topic :: Utilities",
    ],
)
