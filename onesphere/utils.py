import logging


def to_text(value):
    """
    Render a JSON-like scalar the way it appears in query strings and in
    textual comparisons: ``None`` is empty, booleans are lower-case.
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def to_log_level(level):
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError('Unknown log level: {}'.format(level))
    return resolved


class AttributeDict(dict):
    __getattr__ = dict.__getitem__
    __setattr__ = dict.__setitem__
