"""
service_utils - Cross-cutting helpers for the ChainVote web application.
"""
