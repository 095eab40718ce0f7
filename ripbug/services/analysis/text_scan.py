"""Низкоуровневый разбор текста: маскирование, скобки, разбиение аргументов."""

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}
QUOTES = {"'", '"', "`"}


def mask_source(text: str) -> str:
    """
    Замаскировать комментарии и содержимое строк пробелами.

    Длина и переводы строк сохраняются, поэтому смещения в маске
    совпадают со смещениями в исходном тексте. Кавычки остаются на месте.
    """
    out = list(text)
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        # Однострочный комментарий
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
            continue

        # Блочный комментарий
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            for j in range(i, end):
                if text[j] != "\n":
                    out[j] = " "
            i = end
            continue

        if ch in QUOTES:
            i = _mask_string(text, out, i)
            continue

        i += 1

    return "".join(out)


def _mask_string(text: str, out: list[str], start: int) -> int:
    """Замаскировать строковый литерал, вернуть индекс после него."""
    quote = text[start]
    i = start + 1
    n = len(text)

    while i < n:
        ch = text[i]
        if ch == "\\":
            out[i] = " "
            if i + 1 < n and text[i + 1] != "\n":
                out[i + 1] = " "
            i += 2
            continue
        if ch == quote:
            return i + 1
        # Обычная строка не переносится на следующую строку
        if ch == "\n" and quote != "`":
            return i
        if ch != "\n":
            out[i] = " "
        i += 1

    return n


def find_closing(masked: str, open_index: int) -> int | None:
    """
    Найти парную закрывающую скобку.

    Args:
        masked: текст после mask_source
        open_index: индекс открывающей скобки

    Returns:
        индекс закрывающей скобки или None, если текст оборван
    """
    stack = []
    for i in range(open_index, len(masked)):
        ch = masked[i]
        if ch in OPENERS:
            stack.append(OPENERS[ch])
        elif ch in CLOSERS:
            if not stack or stack[-1] != ch:
                return None
            stack.pop()
            if not stack:
                return i
    return None


def split_arguments(text: str, track_angles: bool = False) -> list[str]:
    """
    Разбить текст аргументов по запятым верхнего уровня.

    Запятые внутри (), [], {} и строковых литералов не разделяют аргументы.
    С track_angles учитываются и угловые скобки дженериков (для параметров).

        split_arguments("a, {x: 1, y: 2}, [1,2,3]") -> ["a", "{x: 1, y: 2}", "[1,2,3]"]
    """
    if not text.strip():
        return []

    masked = mask_source(text)
    parts = []
    depth = 0
    angle = 0
    start = 0

    for i, ch in enumerate(masked):
        if ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth = max(depth - 1, 0)
        elif track_angles and ch == "<":
            angle += 1
        elif track_angles and ch == ">" and angle > 0 and masked[i - 1] != "=":
            angle -= 1
        elif ch == "," and depth == 0 and angle == 0:
            parts.append(text[start:i])
            start = i + 1

    parts.append(text[start:])

    args = [p.strip() for p in parts]
    # Висячая запятая: f(a, b,)
    if args and not args[-1]:
        args.pop()
    return args


def line_starts(text: str) -> list[int]:
    """Смещения начала каждой строки."""
    starts = [0]
    for i, ch in enumerate(text):
        if ch == "\n":
            starts.append(i + 1)
    return starts


def offset_to_line(starts: list[int], offset: int) -> int:
    """Номер строки (с нуля) для смещения."""
    lo, hi = 0, len(starts) - 1
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if starts[mid] <= offset:
            lo = mid
        else:
            hi = mid - 1
    return lo


def first_identifier(text: str) -> str | None:
    """Первый идентификатор в тексте (для деструктуризации)."""
    current = []
    for ch in text:
        if ch.isalnum() or ch in "_$":
            current.append(ch)
        elif current:
            break
    if not current or current[0].isdigit():
        return None
    return "".join(current)
