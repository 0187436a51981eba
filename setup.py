from setuptools import setup, find_packages

setup(
    name="label_extractor",
    version="0.1.0",
    packages=find_packages(include=["label_extractor", "label_extractor.*", "document_pkg", "document_pkg.*", "label_service", "label_service.*"]),
    install_requires=[
        "opencv-python",
        "numpy",
        "Pillow",
        "PyMuPDF",
        "structlog",
        "PyYAML",
        "pyzmq",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "label-extractor=label_extractor.__main__:main",
            "label-service=label_service.service:run",
        ],
    },
    author="Zhazhalove",
    description="Extract shipping labels from PDF pages and images as standardized 4x6 inch PNG labels",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.10',
)
