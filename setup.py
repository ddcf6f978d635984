'''
As an application, this package isn't intended to be published to PyPI. This
setup.py exists so that we can easily install it with its dependencies and run
it with ``python -m sitemap_proxy``.
'''
from setuptools import setup, find_packages
from pathlib import Path

here = Path(__file__).parent

# Get version
version = {}
with (here / "sitemap_proxy" / "version.py").open() as f:
    exec(f.read(), version)

setup(
    name='sitemap-proxy',
    version=version['__version__'],
    description='Republish an upstream sitemap with URLs removed, added, and '
        'rewritten',
    python_requires=">=3.8",
    keywords='sitemap proxy',
    packages=find_packages(exclude=['tests']),
    install_requires=[
        'aiohttp',
        'h11',
        'lxml',
        'trio',
        'trio-asyncio',
        'yarl',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-trio',
        ],
    },
    entry_points={
        'console_scripts': [
            'sitemap-proxy=sitemap_proxy.__main__:main',
        ],
    },
)
