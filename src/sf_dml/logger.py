import logging

pkg_root = logging.getLogger("sf_dml")


def getLogger(name: str | None):
    if not name:
        return pkg_root
    if name.startswith(pkg_root.name + "."):
        name = name.removeprefix(pkg_root.name + ".")
    return pkg_root.getChild(name)
