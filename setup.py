from setuptools import setup, find_packages

setup(
    name="sqdesk",
    version="1.0.0",
    description="SQDesk — terminal SQL client with a modal editor and multi-source completion",
    packages=find_packages(exclude=["tests*", "*.egg-info"]),
    py_modules=["config", "main", "simple_cli"],
    package_data={"ui": ["*.tcss"]},
    python_requires=">=3.10",
    install_requires=[
        "textual>=0.47.0",
        "rich>=13.7.0",
        "mysql-connector-python>=8.3.0",
        "langchain-community>=0.0.20",
        "langchain-core>=0.1.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "loguru>=0.7.2",
        "prompt_toolkit>=3.0.43",
        "click>=8.1.7",
        "pyperclip>=1.8.2",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sqdesk=main:cli",
        ],
    },
)
