"""
Quizboard backend package.

A FastAPI service for creating quizzes, scoring submissions and ranking
users, on top of a pluggable document store (Firestore in production,
SQLAlchemy or in-memory elsewhere).
"""
