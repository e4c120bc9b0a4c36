from setuptools import setup, find_packages

setup(
    name="ridehail-ratings",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*", "alembic", "alembic.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "psycopg2-binary",
        "python-jose[cryptography]",
        "pydantic>=2",
        "pydantic-settings",
        "python-dotenv",
        "alembic"
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
