"""Helpers for building host declaration metadata in tests."""


def named(name):
    return {"kind": "named", "name": name}


def nullable(shape):
    return {"kind": "union", "members": [shape, {"kind": "null"}]}


def array(shape):
    return {"kind": "array", "element": shape}


def generic(name, *arguments):
    return {"kind": "generic", "name": name, "arguments": list(arguments)}


def prop(name, shape, **extra):
    return {"name": name, "type": shape, **extra}


def accessor(name, shape, deferred=False, arguments=(), **extra):
    return {
        "name": name,
        "type": shape,
        "access": "accessor",
        "deferred": deferred,
        "arguments": list(arguments),
        **extra,
    }


def arg(name, shape, **extra):
    return {"name": name, "type": shape, **extra}


def obj(name, *fields, **extra):
    return {"kind": "object", "name": name, "participates": True, "fields": list(fields), **extra}


def generic_obj(name, param, *fields, **extra):
    return {
        "kind": "generic_object",
        "name": name,
        "participates": True,
        "type_parameters": [param],
        "fields": list(fields),
        **extra,
    }


def enum(name, *values, participates=True, **extra):
    return {
        "kind": "enum",
        "name": name,
        "participates": participates,
        "values": [{"name": v} if isinstance(v, str) else v for v in values],
        **extra,
    }


def scalar(name, internal_type, **extra):
    return {"kind": "scalar", "name": name, "participates": True, "internal_type": internal_type, **extra}


def unit(*declarations, name="test", participation=None):
    return {"name": name, "declarations": list(declarations), "participation": participation or {}}
