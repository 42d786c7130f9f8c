"""
hybrid-rag Setup Script

Install with: pip install -e .
Tests: pip install -e ".[test]"
"""

from setuptools import setup, find_packages

setup(
    name='hybrid-rag',
    version='0.1.0',
    description='Hybrid retrieval and reranking engine: vector + graph + BM25 + cross-encoder',
    packages=find_packages(include=['hybrid_rag', 'hybrid_rag.*']),
    package_data={
        'hybrid_rag.weights': ['config/*.yaml'],
    },
    install_requires=[
        'pydantic>=2.5.0',
        'pyyaml>=6.0.1',
        'numpy>=1.26.0',
        'aiohttp>=3.9.0',
        'structlog>=23.2.0',
        'falkordb>=1.0.0',
        'qdrant-client>=1.10.0',
        'tiktoken>=0.5.0',
        'click>=8.1.0',
    ],
    extras_require={
        'embeddings': [
            'sentence-transformers>=2.2.0',
            'torch>=2.0.0',
        ],
        'test': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.23.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'hybrid-rag=hybrid_rag.cli:cli',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Text Processing :: Indexing',
    ],
)
