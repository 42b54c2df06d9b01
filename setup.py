from setuptools import setup

version = '0.1'

with open("README.md", "r", encoding="utf-8") as f:
    long_descr = f.read()

setup(
    name='pywavelink',
    packages=['pywavelink'],
    version=version,
    license='Apache 2.0',
    description='Control Elgato Wave Link through its local websocket API',
    long_description=long_descr,
    long_description_content_type='text/markdown',
    python_requires='>=3.10',
    keywords=['Elgato', 'Wave Link', 'Mixer'],
    install_requires=[
        "aiohttp>=3.8.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Multimedia :: Sound/Audio :: Mixers',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3.10'
    ],
)
