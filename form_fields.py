from bs4 import BeautifulSoup


class FormFieldExtractor:
    """Reads form input values out of a server-rendered HTML page."""

    def __init__(self, html_content):
        self.soup = BeautifulSoup(html_content or "", 'html.parser')

    def get_input_value(self, selector):
        """Returns the value attribute of the first element matching a CSS selector.

        Args:
            selector (str): CSS selector, e.g. ``input[name="nonce"]`` or ``#userId``

        Returns:
            str or None: The attribute value, None if the element or attribute is missing
        """
        element = self.soup.select_one(selector)
        if element is None:
            return None
        return element.get('value')

    def get_input_values(self, selectors):
        """Maps each field name to the value found by its selector."""
        return {name: self.get_input_value(selector) for name, selector in selectors.items()}
