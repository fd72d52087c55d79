"""LMS Bridge setup."""
from pathlib import Path

from setuptools import find_packages, setup

PROJECT_NAME = "LMS Bridge"
PROJECT_PACKAGE_NAME = "lms_bridge"
PROJECT_VERSION = "1.0.0"
PROJECT_REQ_PYTHON_VERSION = "3.11"
PROJECT_LICENSE = "Apache License 2.0"

PROJECT_DIR = Path(__file__).parent.resolve()
README_FILE = PROJECT_DIR / "README.md"
REQUIREMENTS_FILE = PROJECT_DIR / "requirements.txt"
REQUIREMENTS_TEST_FILE = PROJECT_DIR / "requirements_test.txt"
PACKAGES = find_packages(exclude=["tests", "tests.*"])

setup(
    name=PROJECT_PACKAGE_NAME,
    version=PROJECT_VERSION,
    description="Mirror Logitech Media Server players into a local device registry",
    license=PROJECT_LICENSE,
    long_description=README_FILE.read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=PACKAGES,
    include_package_data=True,
    zip_safe=False,
    install_requires=REQUIREMENTS_FILE.read_text(encoding="utf-8").splitlines(),
    extras_require={"test": REQUIREMENTS_TEST_FILE.read_text(encoding="utf-8").splitlines()},
    python_requires=f">={PROJECT_REQ_PYTHON_VERSION}",
    test_suite="tests",
    entry_points={"console_scripts": ["lms-bridge = lms_bridge.__main__:main"]},
)
