"""
Welfare Scheme Eligibility Assistant
Collects a citizen profile through conversation and matches it against
rule-annotated government schemes
"""
__version__ = "1.0.0"
