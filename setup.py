from setuptools import setup, find_packages

setup(
    name="provGraph",
    version="0.3.0",
    description="Typed PROV-O provenance bundles to and from RDF quad stores",
    author="Your Name",
    author_email="you@example.com",
    packages=find_packages(include=["provGraph", "provGraph.*"]),
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0",
        "requests>=2.31.0",
        "rdflib>=7.0.0",
        "tabulate>=0.8.9",
    ],
    extras_require={
        "test": ["pytest>=7.0", "requests-mock>=1.11.0"],
    },
    entry_points={
        "console_scripts": ["provgraph=provGraph.cli.__main__:main"],
    },
    license="MIT",
)
