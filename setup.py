from setuptools import setup, find_namespace_packages

with open("requirements.txt", "r") as f:
    requirements = [line for line in f.read().splitlines() if line.strip()]

setup(
    name="chat_client",
    version="1.0",
    packages=find_namespace_packages(include=["chat_client", "chat_client.*"]),
    install_requires=requirements,
    extras_require={"test": ["pytest>=7", "pytest-asyncio"]},
)
