"""Reservation business logic"""
