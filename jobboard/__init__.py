"""Skill-Bridge job board backend."""
