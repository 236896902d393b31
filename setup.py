from setuptools import find_packages, setup

setup(
    name="zetsubou",
    packages=find_packages("src"),
    package_dir={"": "src"},
    version="1.0.0",
    license="MIT",
    long_description="",
    long_description_content_type="text/markdown",
    description="An async Python client for the Zetsubou.life API",
    keywords=["Zetsubou", "API Wrapper", "httpx", "asyncio"],
    python_requires=">=3.10",
    install_requires=["httpx", "tenacity"],
    extras_require={
        "orjson": ["orjson"],
        "test": ["pytest", "pytest-asyncio"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: AsyncIO",
    ],
)
