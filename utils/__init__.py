"""
Text, number and URL helpers shared by the parsers and services.
"""
