"""Namespace qualification for short class names in module config keys.

An application such as::

    Ext.application({
        name: 'MyApp',
        controllers: ['Main']
    });

refers to ``MyApp.controller.Main``. The same rule applies to ``models``,
``views`` and ``stores`` inside ``Ext.define`` bodies, where the namespace is
the first segment of the defined class name::

    Ext.define('MyApp.controller.Main', {
        views: [
            'MyView1',              // -> 'MyApp.view.MyView1'
            'sub.View2',            // -> 'MyApp.view.sub.View2'
            'MyApp.view.MyView3',   // unchanged
            'OtherApp.view.View6'   // unchanged
        ]
    });
"""

from __future__ import annotations


def is_qualified(namespace: str, module: str, token: str) -> bool:
    """True if ``token`` already names a class under ``namespace`` or any ``*.module.*`` path."""
    return token.startswith(namespace + ".") or f".{module}." in token


def qualify(namespace: str | None, module: str, token: str) -> str:
    if not namespace:
        return token
    if is_qualified(namespace, module, token):
        return token
    return f"{namespace}.{module}.{token}"


def root_namespace(class_name: str) -> str:
    return class_name.split(".", 1)[0]


def in_namespace(class_name: str, namespaces) -> bool:
    """True if ``class_name`` is one of ``namespaces`` or lives under one of them."""
    return any(class_name == ns or class_name.startswith(ns + ".") for ns in namespaces)
