from setuptools import setup, find_packages

setup(
    name='openjdk-api',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.10',
    install_requires=[
        'aiohttp>=3.9',
        'aiofiles',
        'platformdirs',
        'PyYAML',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'openjdk-api=openjdk_api.cli:main',
        ],
    },
)
