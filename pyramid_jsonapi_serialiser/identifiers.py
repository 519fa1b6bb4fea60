"""Convert model names to JSON:API resource type tokens."""

import re
from functools import lru_cache

import inflect

_inflector = inflect.engine()

# Acronym followed by a capitalised word, capitalised or lower case word,
# bare acronym, digits.
WORD_RE = re.compile(r'[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+')


@lru_cache(maxsize=None)
def type_token(name):
    """Return the lower-kebab resource type token for a model name.

    Examples:
        ``UserProfile`` -> ``user-profile``, ``HTTPServer`` -> ``http-server``,
        ``user_profile`` -> ``user-profile``.
    """
    words = WORD_RE.findall(name)
    if not words:
        raise ValueError('Cannot make a type token from {!r}.'.format(name))
    return '-'.join(word.lower() for word in words)


@lru_cache(maxsize=None)
def pluralise(token):
    """Pluralise the last word of a kebab-case token.

    Irregular plurals are respected, so ``person`` becomes ``people``.
    """
    head, sep, last = token.rpartition('-')
    return '{}{}{}'.format(head, sep, _inflector.plural_noun(last))


def collection_name(name):
    """Plural collection (URL path) name for a model name."""
    return pluralise(type_token(name))
