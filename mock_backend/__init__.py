"""In-memory store backend for local development and tests"""
