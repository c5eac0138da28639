"""
Analysis Engine

Asynchronous analysis jobs for a website project:
1. Content quality scoring with ranked recommendations
2. SEO health assessment across four weighted pillars
3. Competitive analysis from live data, with a simulated fallback
4. Deterministic semantic analysis (similarity, topics, keyword gaps)
"""

__version__ = "0.4.0"
