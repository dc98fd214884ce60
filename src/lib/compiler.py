"""
Compiler for macrodown document trees to HTML

Transforms a parsed Node tree into an HTML fragment, and optionally writes it
out as a standalone HTML document.
"""

import re
from html import escape
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..config import appsettings, AppSettings
from ..models.node import BAD_NODE_TYPE, Node
from .log import LOG, WARN


LINK_PATTERN = re.compile(r'\[([^\]\n]+)\]\(([^)\s]*)\)')

VOID_TAGS = {'br', 'hr', 'img', 'input', 'meta', 'link', 'source', 'embed'}


class Compiler:
    """
    Compiles a document tree to HTML

    Responsibilities:
    - Render host nodes (paragraphs, headings, lists, code, text)
    - Render element and html nodes returned by macro handlers
    - Render BadMacroNodes as visible markers
    - Write the standalone document
    """

    def __init__(self, tree: Node, settings: Optional[AppSettings] = None, title: str = "") -> None:
        """
        Initialize compiler

        Args:
            tree: Root node produced by Parser.parse()
            settings: AppSettings (bad_node_tag, output_filename)
            title: Document <title>; defaults to the first heading's text
        """
        self.tree = tree
        self.settings = settings or appsettings
        self.title = title
        self.node_count = 0
        self.renderers: Dict[str, Callable[[Node], str]] = {
            "root": self.root_compile,
            "paragraph": self.paragraph_compile,
            "heading": self.heading_compile,
            "list": self.list_compile,
            "listItem": self.listItem_compile,
            "code": self.code_compile,
            "text": self.text_compile,
            "html": self.html_compile,
            "element": self.element_compile,
            BAD_NODE_TYPE: self.badNode_compile,
        }

    def compile(self) -> str:
        """
        Compile the tree to an HTML fragment

        Returns:
            HTML string, one top-level block per line
        """
        self.node_count = 0
        html = self.node_compile(self.tree)
        LOG(f"Compiled {self.node_count} nodes", level=2)
        return html

    def write(self, output_dir: str) -> Dict[str, Any]:
        """
        Compile and write a standalone HTML document

        Args:
            output_dir: Directory receiving settings.output_filename

        Returns:
            dict with status, output_file and node_count
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        document = self.htmlDocument_build(self.compile())
        output_file = output_path / self.settings.output_filename
        output_file.write_text(document, encoding='utf-8')
        LOG(f"Wrote {output_file}", level=2)

        return {
            'status': True,
            'output_file': str(output_file),
            'node_count': self.node_count,
        }

    def node_compile(self, node: Node) -> str:
        """Dispatch a node to its renderer; unknown types render their children"""
        self.node_count += 1
        renderer = self.renderers.get(node.type)
        if renderer is None:
            WARN(f"Unknown node type '{node.type}', rendering children only")
            return self.children_compile(node.children, '')
        return renderer(node)

    def children_compile(self, children: List[Node], separator: str = '\n') -> str:
        return separator.join(self.node_compile(child) for child in children)

    def root_compile(self, node: Node) -> str:
        html = self.children_compile(node.children)
        return html + '\n' if html else ''

    def paragraph_compile(self, node: Node) -> str:
        return f"<p>{self.children_compile(node.children, '')}</p>"

    def heading_compile(self, node: Node) -> str:
        depth = node.data.get('depth', 1)
        return f"<h{depth}>{self.children_compile(node.children, '')}</h{depth}>"

    def list_compile(self, node: Node) -> str:
        return f"<ul>\n{self.children_compile(node.children)}\n</ul>"

    def listItem_compile(self, node: Node) -> str:
        # A single paragraph renders inline, like a tight list item
        if len(node.children) == 1 and node.children[0].type == "paragraph":
            return f"<li>{self.children_compile(node.children[0].children, '')}</li>"
        return f"<li>\n{self.children_compile(node.children)}\n</li>"

    def code_compile(self, node: Node) -> str:
        lang = node.data.get('lang')
        class_attr = f' class="language-{escape(lang)}"' if lang else ''
        return f"<pre><code{class_attr}>{escape(node.value or '', quote=False)}\n</code></pre>"

    def text_compile(self, node: Node) -> str:
        """
        Escape text and render [text](url) links

        Example:
            "see [docs](http://x.org) & more"
            -> 'see <a href="http://x.org">docs</a> &amp; more'
        """
        value = node.value or ''
        parts = []
        pos = 0
        for match in LINK_PATTERN.finditer(value):
            parts.append(escape(value[pos:match.start()], quote=False))
            parts.append(
                f'<a href="{escape(match.group(2))}">{escape(match.group(1), quote=False)}</a>'
            )
            pos = match.end()
        parts.append(escape(value[pos:], quote=False))
        return ''.join(parts)

    def html_compile(self, node: Node) -> str:
        return node.value or ''

    def element_compile(self, node: Node) -> str:
        """Render a generic element built with Node.element()"""
        tag = node.data.get('tag', 'div')
        attrs = self.attributes_render(node.data.get('properties', {}))
        if tag in VOID_TAGS:
            return f"<{tag}{attrs}>"
        return f"<{tag}{attrs}>{self.children_compile(node.children, '')}</{tag}>"

    def badNode_compile(self, node: Node) -> str:
        tag = self.settings.bad_node_tag
        return f"<{tag}>{escape(node.message, quote=False)}</{tag}>"

    @staticmethod
    def attributes_render(properties: Dict[str, Any]) -> str:
        """
        Render element properties as HTML attributes

        `className` becomes `class`; None values are skipped, True renders a
        bare attribute.

        Example:
            {"className": "note", "hidden": True} -> ' class="note" hidden'
        """
        rendered = []
        for key, value in properties.items():
            if value is None or value is False:
                continue
            name = 'class' if key == 'className' else key
            if value is True:
                rendered.append(f' {name}')
            else:
                rendered.append(f' {name}="{escape(str(value))}"')
        return ''.join(rendered)

    def title_find(self) -> str:
        """Text of the first heading in the document, or ""."""
        for node in self.tree.walk():
            if node.type == "heading":
                return ''.join(child.value or '' for child in node.walk() if child.type == "text")
        return ''

    def htmlDocument_build(self, content: str) -> str:
        """Wrap a compiled fragment in a minimal standalone HTML document"""
        title = escape(self.title or self.title_find() or 'macrodown')
        return (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head>\n"
            '<meta charset="utf-8">\n'
            f"<title>{title}</title>\n"
            "</head>\n"
            "<body>\n"
            f"{content}"
            "</body>\n"
            "</html>\n"
        )
