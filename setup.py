from setuptools import setup, find_packages

setup(
    name='webpilot',
    version='0.1.0',
    license="Apache 2.0",
    description="Webpilot: a JSON-RPC (MCP) server that drives a web browser through Playwright",
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"webpilot": ["configs/*.yaml"]},
    include_package_data=True,
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "pydantic>=2.5",
        "click>=8.1",
        "playwright>=1.41",
        "PyYAML>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    entry_points={
        'console_scripts': [
            'webpilot-server=webpilot.command.webpilot_server:run',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.9',
)
