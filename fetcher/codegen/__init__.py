"""
Code generation for fetched Lit contracts.
"""
