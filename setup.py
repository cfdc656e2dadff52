import setuptools


with open('README.md', 'r') as fh:
    long_description = fh.read()

setuptools.setup(
    name="jobevents",
    version="0.3.0",
    author="Pavle Jonoski",
    author_email="jonoski.pavle@gmail.com",
    description="Buffered relational persistence for test and job lifecycle events.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    classifiers=(
        "Programming Language :: Python :: 3",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries",
        "Topic :: Software Development :: Testing",
    ),
    python_requires=">=3.7",
    install_requires=[
        "PyYAML>=5.1",
        "SQLAlchemy>=1.4",
    ],
    extras_require={
        "test": [
            "pytest>=6.0",
        ],
    },
)
