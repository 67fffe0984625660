"""
Runtime prelude - the JavaScript program an executor runs for one render.

The program is a single expression evaluating to a JSON string:

    {"status": "ok", "kind": ..., "tree": ..., "logs": [...]}
    {"status": "error", "phase": ..., "name": ..., "message": ..., "logs": [...]}

It carries a small React-compatible element model and a static renderer
(hooks behave as in server rendering: state is the initial value and
effects never run). Timers are inert and console output is captured.
"""

import json
from typing import Mapping

from uigen.sandbox.library import Capability
from uigen.sandbox.transform import FACTORY, FRAGMENT, TransformedUnit


MAX_RENDER_DEPTH = 256

PRELUDE = r"""
var __logs = [];
var __ELEMENT = "uigen.element";
var __idCounter = 0;

function __format(value) {
  if (typeof value === "string") return value;
  if (typeof value === "function") return "[Function " + (value.name || "anonymous") + "]";
  if (value instanceof Error) return value.name + ": " + value.message;
  try {
    var text = JSON.stringify(value);
    return text === undefined ? String(value) : text;
  } catch (e) {
    return String(value);
  }
}

function __capture(level) {
  return function () {
    var parts = [];
    for (var i = 0; i < arguments.length; i++) parts.push(__format(arguments[i]));
    var line = parts.join(" ");
    __logs.push(level === "log" ? line : "[" + level + "] " + line);
  };
}

globalThis.console = {
  log: __capture("log"), info: __capture("info"), debug: __capture("debug"),
  warn: __capture("warn"), error: __capture("error"), trace: __capture("trace"),
};

function __inert() { return 0; }
globalThis.setTimeout = __inert;
globalThis.setInterval = __inert;
globalThis.clearTimeout = __inert;
globalThis.clearInterval = __inert;
globalThis.requestAnimationFrame = __inert;
globalThis.cancelAnimationFrame = __inert;
globalThis.queueMicrotask = __inert;

// ----- elements ------------------------------------------------------------

var Fragment = { __marker: "Fragment" };
var StrictMode = { __marker: "StrictMode" };
var Suspense = { __marker: "Suspense" };

function createElement(type, config) {
  var props = {};
  var key = null;
  if (config != null) {
    for (var name in config) {
      if (name === "key") key = config.key == null ? null : String(config.key);
      else if (name !== "ref") props[name] = config[name];
    }
  }
  var count = arguments.length - 2;
  if (count === 1) props.children = arguments[2];
  else if (count > 1) props.children = Array.prototype.slice.call(arguments, 2);
  if (type != null && type.defaultProps) {
    for (var d in type.defaultProps) {
      if (props[d] === undefined) props[d] = type.defaultProps[d];
    }
  }
  return { $$typeof: __ELEMENT, type: type, key: key, props: props };
}

function isValidElement(value) {
  return value !== null && typeof value === "object" && value.$$typeof === __ELEMENT;
}

function cloneElement(element, config) {
  var props = Object.assign({}, element.props);
  var key = element.key;
  if (config != null) {
    for (var name in config) {
      if (name === "key") key = String(config.key);
      else if (name !== "ref") props[name] = config[name];
    }
  }
  if (arguments.length > 2) {
    props.children = arguments.length === 3 ? arguments[2] : Array.prototype.slice.call(arguments, 2);
  }
  return { $$typeof: __ELEMENT, type: element.type, key: key, props: props };
}

function __flatten(children, out) {
  if (Array.isArray(children)) {
    for (var i = 0; i < children.length; i++) __flatten(children[i], out);
  } else if (children != null && typeof children !== "boolean") {
    out.push(children);
  }
  return out;
}

var Children = {
  toArray: function (children) { return __flatten(children, []); },
  count: function (children) { return __flatten(children, []).length; },
  map: function (children, fn) {
    if (children == null) return children;
    return __flatten(children, []).map(function (child, i) { return fn(child, i); });
  },
  forEach: function (children, fn) { __flatten(children, []).forEach(fn); },
  only: function (children) {
    if (!isValidElement(children)) throw new Error("React.Children.only expected to receive a single React element child.");
    return children;
  },
};

// ----- components ----------------------------------------------------------

function Component(props, context) {
  this.props = props;
  this.context = context;
  this.state = {};
}
Component.prototype.isReactComponent = {};
Component.prototype.setState = function () {};
Component.prototype.forceUpdate = function () {};

function PureComponent(props, context) { Component.call(this, props, context); }
PureComponent.prototype = Object.create(Component.prototype);
PureComponent.prototype.constructor = PureComponent;

function createContext(defaultValue) {
  var context = { __stack: [], __default: defaultValue };
  context.Provider = { __provider: context };
  context.Consumer = { __consumer: context };
  return context;
}

function __readContext(context) {
  if (!context || !context.__stack) throw new TypeError("useContext expects a context object");
  var stack = context.__stack;
  return stack.length ? stack[stack.length - 1] : context.__default;
}

function forwardRef(render) {
  var wrapped = function (props) { return render(props, null); };
  wrapped.displayName = render.displayName || render.name;
  return wrapped;
}

function memo(component) { return component; }

function lazy() {
  throw new Error("React.lazy is not supported in the preview");
}

// ----- hooks (server semantics) --------------------------------------------

function __noop() {}

function useState(initial) {
  return [typeof initial === "function" ? initial() : initial, __noop];
}
function useReducer(reducer, initialArg, init) {
  return [init ? init(initialArg) : initialArg, __noop];
}
function useEffect() {}
function useLayoutEffect() {}
function useInsertionEffect() {}
function useImperativeHandle() {}
function useDebugValue() {}
function useMemo(factory) { return factory(); }
function useCallback(callback) { return callback; }
function useRef(initial) { return { current: initial === undefined ? null : initial }; }
function useContext(context) { return __readContext(context); }
function useId() { __idCounter += 1; return ":r" + __idCounter.toString(32) + ":"; }
function useTransition() { return [false, function (fn) { fn(); }]; }
function useDeferredValue(value) { return value; }
function useSyncExternalStore(subscribe, getSnapshot, getServerSnapshot) {
  return (getServerSnapshot || getSnapshot)();
}

var React = {
  createElement: createElement, cloneElement: cloneElement, isValidElement: isValidElement,
  Fragment: Fragment, StrictMode: StrictMode, Suspense: Suspense, Children: Children,
  Component: Component, PureComponent: PureComponent, createContext: createContext,
  forwardRef: forwardRef, memo: memo, lazy: lazy,
  useState: useState, useReducer: useReducer, useEffect: useEffect,
  useLayoutEffect: useLayoutEffect, useInsertionEffect: useInsertionEffect,
  useImperativeHandle: useImperativeHandle, useDebugValue: useDebugValue,
  useMemo: useMemo, useCallback: useCallback, useRef: useRef, useContext: useContext,
  useId: useId, useTransition: useTransition, useDeferredValue: useDeferredValue,
  useSyncExternalStore: useSyncExternalStore,
};

// ----- capability stubs ----------------------------------------------------

function __stub(name) {
  var stub = function (props) { return createElement({ __host: name }, props); };
  stub.displayName = name;
  return stub;
}

function __icon(name) {
  var icon = function (props) {
    var config = Object.assign({}, props, { "data-icon": name });
    delete config.children;
    return createElement({ __host: name }, config);
  };
  icon.displayName = name;
  return icon;
}

// ----- static renderer -----------------------------------------------------

function __describe(value) {
  if (value === null || typeof value !== "object") return String(value);
  return "object with keys {" + Object.keys(value).join(", ") + "}";
}

function __serialize(value, depth) {
  if (value === null || typeof value === "string" || typeof value === "boolean") return value;
  if (typeof value === "number") return isFinite(value) ? value : String(value);
  if (typeof value === "bigint") return String(value);
  if (typeof value === "function" || typeof value === "symbol" || value === undefined) return undefined;
  if (depth > 8) return undefined;
  if (isValidElement(value)) return __root(__render(value, depth));
  if (Array.isArray(value)) {
    return value.map(function (item) {
      var v = __serialize(item, depth + 1);
      return v === undefined ? null : v;
    });
  }
  var out = {};
  for (var name in value) {
    var v = __serialize(value[name], depth + 1);
    if (v !== undefined) out[name] = v;
  }
  return out;
}

function __hostNode(type, props, depth) {
  var serialized = {};
  for (var name in props) {
    if (name === "children") continue;
    var v = __serialize(props[name], depth + 1);
    if (v !== undefined) serialized[name] = v;
  }
  var children = [];
  var rendered = __render(props.children, depth + 1);
  for (var i = 0; i < rendered.length; i++) {
    var child = rendered[i];
    var last = children.length - 1;
    if (typeof child === "string" && last >= 0 && typeof children[last] === "string") {
      children[last] += child;
    } else {
      children.push(child);
    }
  }
  return { type: type, props: serialized, children: children };
}

function __render(node, depth) {
  if (depth > %(max_depth)d) throw new RangeError("Maximum render depth exceeded");
  if (node == null || typeof node === "boolean") return [];
  if (typeof node === "string") return node === "" ? [] : [node];
  if (typeof node === "number" || typeof node === "bigint") return [String(node)];
  if (Array.isArray(node)) {
    var items = [];
    for (var i = 0; i < node.length; i++) items = items.concat(__render(node[i], depth + 1));
    return items;
  }
  if (typeof node === "function") return [];
  if (!isValidElement(node)) {
    throw new Error("Objects are not valid as a React child (found: " + __describe(node) + ").");
  }

  var type = node.type;
  var props = node.props;
  if (type === Fragment || type === StrictMode || type === Suspense) {
    return __render(props.children, depth + 1);
  }
  if (typeof type === "string") return [__hostNode(type, props, depth)];
  if (typeof type === "function") {
    if (type.prototype && type.prototype.isReactComponent) {
      var instance = new type(props);
      instance.props = props;
      if (instance.state == null) instance.state = {};
      if (type.getDerivedStateFromProps) {
        Object.assign(instance.state, type.getDerivedStateFromProps(props, instance.state));
      }
      return __render(instance.render(), depth + 1);
    }
    return __render(type(props), depth + 1);
  }
  if (type && type.__host) return [__hostNode(type.__host, props, depth)];
  if (type && type.__provider) {
    var stack = type.__provider.__stack;
    stack.push(props.value);
    try {
      return __render(props.children, depth + 1);
    } finally {
      stack.pop();
    }
  }
  if (type && type.__consumer) {
    return __render(props.children(__readContext(type.__consumer)), depth + 1);
  }
  throw new TypeError(
    "Element type is invalid: expected a string or a component but got: " + __describe(type)
  );
}

function __root(items) {
  if (items.length === 1 && typeof items[0] === "object") return items[0];
  return { type: "#fragment", props: {}, children: items };
}

function __fail(phase, error) {
  var name = "Error";
  var message;
  if (error instanceof Error || (error && typeof error === "object" && "message" in error)) {
    name = error.name || "Error";
    message = String(error.message);
  } else {
    message = __format(error);
  }
  return JSON.stringify({ status: "error", phase: phase, name: name, message: message, logs: __logs });
}

function __main(makeLibrary, body) {
  var library, unit, value, kind, tree;
  try {
    library = makeLibrary();
  } catch (e) {
    return __fail("library", e);
  }
  library.%(factory)s = createElement;
  library.%(fragment)s = Fragment;
  try {
    unit = new Function("__library", body);
  } catch (e) {
    return __fail("compile", e);
  }
  try {
    value = unit(library);
  } catch (e) {
    return __fail("execute", e);
  }
  try {
    if (isValidElement(value)) {
      kind = "element";
      tree = __root(__render(value, 0));
    } else if (typeof value === "function") {
      kind = "component";
      tree = __root(__render(createElement(value, null), 0));
    } else {
      var shown;
      try {
        shown = String(value);
      } catch (e) {
        shown = Object.prototype.toString.call(value);
      }
      kind = "value";
      tree = {
        type: "div",
        props: { className: "p-4 text-center text-gray-500" },
        children: ["Component rendered successfully but returned: " + shown],
      };
    }
  } catch (e) {
    return __fail("render", e);
  }
  return JSON.stringify({ status: "ok", kind: kind, tree: tree, logs: __logs });
}
""" % {"max_depth": MAX_RENDER_DEPTH, "factory": FACTORY, "fragment": FRAGMENT}


def build_library_source(library: Mapping[str, Capability]) -> str:
    """JavaScript object literal holding every capability."""
    entries = [f"    {json.dumps(name)}: {capability.source}" for name, capability in library.items()]
    return "{\n" + ",\n".join(entries) + "\n  }"


def build_program(unit: TransformedUnit, library: Mapping[str, Capability]) -> str:
    """
    Assemble the self-contained program for one render.

    The unit body travels as a string and is compiled inside the sandbox
    with `new Function("__library", body)`, so syntax errors surface as a
    "compile" phase failure rather than breaking the program itself.
    """
    return (
        "(function () {\n"
        + PRELUDE
        + "\nreturn __main(function () {\n  return "
        + build_library_source(library)
        + ";\n}, "
        + json.dumps(unit.body)
        + ");\n})()"
    )
