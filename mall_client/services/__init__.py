"""Shared services: request pipeline, navigation hooks, money helpers."""
