"""
Storage adapters: vector stores, embedding providers and graph adjacency.
"""
