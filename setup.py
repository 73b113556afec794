"""Setup script for Competitor Intel."""

from setuptools import setup, find_packages

setup(
    name="competitor-intel",
    version="1.0.0",
    description="Competitive website analysis and comparison engine",
    author="Common Notary Apostille",
    packages=find_packages(include=["competitor_intel", "competitor_intel.*"]),
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9.0",
        "beautifulsoup4>=4.12.0",
        "loguru>=0.7.0",
        "tenacity>=8.2.0",
        "sqlalchemy>=2.0.0",
        "click>=8.1.0",
        "rich>=13.6.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "competitor-intel=competitor_intel.cli:main",
        ],
    },
    python_requires=">=3.10",
)
