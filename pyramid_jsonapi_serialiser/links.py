"""Construct API path prefixes and resource links."""


class RoutePatternConstructor():
    """Construct path patterns from settings.

    Arguments:
        settings: settings object with ``route_pattern_sep``,
            ``route_pattern_prefix`` and ``api_version`` attributes.
    """

    def __init__(self, settings):
        self.settings = settings

    @property
    def sep(self):
        return str(self.settings.route_pattern_sep)

    def pattern_from_components(self, *components, start_sep=False, end_sep=False):
        """Construct a path pattern from components.

        Join components together with self.sep.
        Remove all occurrences of '', and strip extra separators.

        Arguments:
            *components (str): route pattern components.
            start_sep (bool): Add a leading separator
            end_sep (bool): Add a trailing separator
        """
        psep = self.sep
        components = [str(x) for x in components if str(x) != '']
        pattern = psep.join(components).replace(psep * 2, psep)
        if start_sep and not pattern.startswith(psep):
            pattern = '{}{}'.format(psep, pattern)
        if end_sep and not pattern.endswith(psep):
            pattern = '{}{}'.format(pattern, psep)
        return pattern

    def api_prefix(self):
        """Path prefix under which all resources live, e.g. '/api/v1'.

        Returns '' when neither a prefix nor a version is configured.
        """
        pattern = self.pattern_from_components(
            self.settings.route_pattern_prefix,
            self.settings.api_version,
            start_sep=True,
        )
        return pattern.rstrip(self.sep)

    def strip_api_prefix(self, path):
        """Return path relative to the api prefix, or None if outside it."""
        prefix = self.api_prefix()
        if not prefix:
            return path
        if path == prefix:
            return self.sep
        if path.startswith(prefix + self.sep):
            return path[len(prefix):]
        return None


class ResourceLinkGenerator():
    """Generate links to collections and resources.

    Arguments:
        base_url (str): scheme and host (e.g. 'https://example.com'). An empty
            string produces root-relative links.
        rp_constructor (RoutePatternConstructor): supplies the api prefix.
    """

    def __init__(self, base_url, rp_constructor):
        self.base_url = str(base_url).rstrip('/')
        self.rp_constructor = rp_constructor

    def resource_link(self, collection, resource_id=None, *components):
        """Link to a collection, a resource in it, or a sub-path of one."""
        parts = [self.rp_constructor.api_prefix(), collection]
        if resource_id is not None:
            parts.append(str(resource_id))
            parts.extend(components)
        path = self.rp_constructor.pattern_from_components(*parts, start_sep=True)
        return '{}{}'.format(self.base_url, path)
