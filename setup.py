# setup.py
from setuptools import setup, find_packages
from pathlib import Path
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="ocrbridge",
    version="0.3.0",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["ocrbridge", "ocrbridge.*"]),
    description="Drive the EasyOCR command line tool in the background and parse its output into typed records.",
    long_description=long_description,
    long_description_content_type='text/markdown',
    python_requires=">=3.9",

    install_requires=[
        "tqdm",
        "Pillow",
        "numpy",
        "pandas",
        "gradio",
    ],
    extras_require={
        # the recognition tool itself; may also be installed in another interpreter
        "easyocr": ["easyocr"],
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'ocrbridge=ocrbridge.cli:main',
            'ocrbridge-webui=ocrbridge.cli:webui_entry',
        ],
    },
)
