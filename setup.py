from setuptools import setup, find_packages

setup(
    name="dbterm",
    version="1.0.0",
    description="DBTerm - keyboard-driven terminal database client for SQLite, PostgreSQL and MySQL",
    packages=find_packages(exclude=["tests*", "*.egg-info"]),
    py_modules=["config", "main"],
    package_data={"ui": ["*.tcss"]},
    python_requires=">=3.10",
    install_requires=[
        "textual>=0.47.0",
        "rich>=13.7.0",
        "mysql-connector-python>=8.3.0",
        "psycopg2-binary>=2.9.9",
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "loguru>=0.7.2",
        "click>=8.1.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dbterm=main:cli",
        ],
    },
)
