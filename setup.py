"""
Setup script for daily_timetable package.
"""
from setuptools import setup, find_packages

setup(
    name="daily-timetable",
    version="1.0.0",
    description="Daily class timetable resolution and announcement outbox service",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        "fastapi>=0.110.0",
        "pydantic>=2.0.0",
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "uvicorn>=0.27.0",
        "tzdata>=2023.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "daily-timetable-worker=daily_timetable.worker:main",
            "daily-timetable-init-db=daily_timetable.init_db:init_db",
        ],
    },
)
