from setuptools import setup, find_packages
setup(
    name="pagehash-bench",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["numpy", "humanize"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["pagehash-bench = pagebench.cli:main"]},
    python_requires=">=3.9",
)
