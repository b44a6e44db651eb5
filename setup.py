from setuptools import setup, find_packages

setup(
    name="releasegate",  # release gate -> rgate
    version="0.1.0",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    py_modules=["cli"],
    install_requires=[
        "boto3",
        "botocore",
        "requests",
        "PyJWT[crypto]>=2.0",
    ],
    extras_require={
        "test": [
            "pytest",
            "moto[awslambda,iam]>=5.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'rgate=cli:main',
        ],
    },
    author="ecaa",
    description="Pipeline release gate for serverless runtime actions",
    python_requires='>=3.8',
)
