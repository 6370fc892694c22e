import os

from setuptools import find_packages, setup

README = os.path.join(os.path.dirname(__file__), "README.md")


def readme() -> str:
    with open(README, encoding="utf-8") as f:
        return f.read()


setup(
    name="morphe_to_sqlalchemy",
    version="0.1.0",
    description="Generate SQLAlchemy models, enums, structures and entities from a Morphe schema registry",
    long_description=readme(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Database",
        "Intended Audience :: Developers",
    ],
    keywords="morphe schema code generation sqlalchemy orm template",
    license="MIT",
    packages=find_packages(),
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0.0",
        "jinja2>=3.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "sqlalchemy>=2.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "sqlalchemy>=2.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "morphe_to_sqlalchemy=morphe_to_sqlalchemy.morphe_to_sqlalchemy:morphe_to_sqlalchemy",
        ],
    },
    include_package_data=True,
    package_data={
        "morphe_to_sqlalchemy": ["templates/*/*.jinja2"],
    },
    zip_safe=False,
)
