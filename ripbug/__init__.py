"""Поиск ломающих изменений сигнатур функций в JavaScript/TypeScript."""

__version__ = "0.1.0"
