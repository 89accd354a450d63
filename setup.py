from setuptools import find_packages, setup

setup(
    name="dorado16s",
    version="0.1.0",
    packages=find_packages("src"),
    package_dir={"": "src"},
    entry_points={"console_scripts": ["dorado16s = dorado16s.main:app"]},
    test_suite="tests",
    python_requires=">=3.10",
    install_requires=["typer", "typing_extensions", "rich", "pod5", "requests"],
    extras_require={"test": ["pytest"]},
)
