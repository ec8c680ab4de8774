"""Package setup for wechat_mirror."""

from setuptools import setup, find_packages

setup(
    name="wechat-mirror",
    version="1.0.0",
    description="Mirror the media of WeChat articles to local storage and rewrite their HTML",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.25.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
        "fastapi>=0.100.0",
        "pydantic>=2.0.0",
        "uvicorn>=0.23.0",
        "python-dotenv>=1.0.0",
        "colorlog>=6.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "wechat-mirror=wechat_mirror.cli:main",
        ],
    },
)
