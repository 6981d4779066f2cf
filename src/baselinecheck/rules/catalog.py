"""Built-in detection rules, grouped the way presets toggle them."""

from __future__ import annotations

import re
from types import MappingProxyType

from baselinecheck.rules.models import Category, PatternRule, Rule


def _rule(
    name: str,
    pattern: str,
    category: Category,
    description: str = "",
    framework: str = "",
    flags: int = 0,
) -> Rule:
    return Rule(
        name=name,
        matcher=PatternRule.compile(pattern, flags),
        category=category,
        framework=framework,
        description=description,
    )


MODERN_APIS: tuple[Rule, ...] = (
    _rule(
        "File System Access API",
        r"showOpenFilePicker|showSaveFilePicker|showDirectoryPicker",
        Category.API,
        "File System Access API for reading/writing files",
    ),
    _rule(
        "Web Streams API",
        r"ReadableStream|WritableStream|TransformStream",
        Category.API,
        "Web Streams API for streaming data",
    ),
    _rule(
        "Web Locks API",
        r"navigator\.locks|requestLock|releaseLock",
        Category.API,
        "Web Locks API for coordination between tabs",
    ),
    _rule(
        "Web Share API",
        r"navigator\.share|canShare",
        Category.API,
        "Web Share API for native sharing",
    ),
    _rule(
        "Web Serial API",
        r"navigator\.serial|requestPort|openPort",
        Category.API,
        "Web Serial API for serial communication",
    ),
    _rule(
        "Web Bluetooth API",
        r"navigator\.bluetooth|requestDevice|getAvailability",
        Category.API,
        "Web Bluetooth API for Bluetooth communication",
    ),
    _rule(
        "Web USB API",
        r"navigator\.usb|requestDevice|getDevices",
        Category.API,
        "Web USB API for USB device access",
    ),
    _rule(
        "WebXR API",
        r"navigator\.xr|requestSession|isSessionSupported",
        Category.API,
        "WebXR API for VR/AR experiences",
    ),
    _rule(
        "Web Audio API",
        r"AudioContext|OfflineAudioContext|AudioWorklet",
        Category.API,
        "Web Audio API for audio processing",
    ),
    _rule(
        "Web Crypto API",
        r"crypto\.subtle|generateKey|importKey|exportKey",
        Category.API,
        "Web Crypto API for cryptographic operations",
    ),
    _rule(
        "Web Animations API",
        r"element\.animate|Animation|KeyframeEffect",
        Category.API,
        "Web Animations API for complex animations",
    ),
    _rule(
        "Intersection Observer v2",
        r"IntersectionObserver.*trackVisibility|trackVisibility.*true",
        Category.API,
        "Intersection Observer v2 with visibility tracking",
    ),
    _rule(
        "Resize Observer",
        r"ResizeObserver|ResizeObserverEntry",
        Category.API,
        "Resize Observer for element size changes",
    ),
    _rule(
        "Performance Observer",
        r"PerformanceObserver|observe.*performance",
        Category.API,
        "Performance Observer for performance monitoring",
    ),
    _rule(
        "Payment Request API",
        r"PaymentRequest|PaymentResponse|PaymentMethodChangeEvent",
        Category.API,
        "Payment Request API for web payments",
    ),
    _rule(
        "Web Authentication API",
        r"navigator\.credentials|create.*publicKey|get.*publicKey",
        Category.API,
        "Web Authentication API for strong authentication",
    ),
)

MODERN_CSS: tuple[Rule, ...] = (
    _rule(
        "CSS Grid (advanced)",
        r"grid-template-areas|grid-area|subgrid",
        Category.CSS,
        "Advanced CSS Grid features",
    ),
    _rule(
        "CSS Flexbox (advanced)",
        r"flex-basis|flex-grow|flex-shrink|align-content",
        Category.CSS,
        "Advanced CSS Flexbox features",
    ),
    _rule(
        "CSS Container Queries",
        r"@container|container-type|container-name",
        Category.CSS,
        "CSS Container Queries for responsive design",
    ),
    _rule("CSS Subgrid", r"subgrid", Category.CSS, "CSS Subgrid for nested grids"),
    _rule(
        "CSS Cascade Layers",
        r"@layer|layer\(",
        Category.CSS,
        "CSS Cascade Layers for specificity control",
    ),
    _rule(
        "CSS Color Functions",
        r"color-mix\(|oklch\(|lch\(|lab\(",
        Category.CSS,
        "Modern CSS color functions",
    ),
    _rule(
        "CSS View Transitions",
        r"@view-transition|view-transition-name",
        Category.CSS,
        "CSS View Transitions for page transitions",
    ),
    _rule(
        "CSS Scroll-driven Animations",
        r"animation-timeline|scroll\(|view\(",
        Category.CSS,
        "CSS Scroll-driven Animations",
    ),
    _rule(
        "CSS Nesting",
        r"&[^:]*\{|&::|&\.",
        Category.CSS,
        "CSS Nesting",
    ),
    _rule(
        "CSS Logical Properties",
        r"margin-(?:inline|block)|padding-(?:inline|block)"
        r"|border-(?:inline|block)|inset-(?:inline|block)",
        Category.CSS,
        "CSS Logical Properties for internationalization",
    ),
    _rule(
        "CSS Custom Properties (advanced)",
        r"var\(--[^)]+\)|@property",
        Category.CSS,
        "Advanced CSS Custom Properties with @property",
    ),
    _rule(
        "CSS Math Functions",
        r"calc\(|min\(|max\(|clamp\(|sin\(|cos\(|tan\(|sqrt\(|pow\(",
        Category.CSS,
        "CSS Math Functions for dynamic calculations",
    ),
)

MODERN_HTML: tuple[Rule, ...] = (
    _rule(
        "Web Components",
        r"customElements\.define|<[a-z]+-[a-z-]+",
        Category.HTML,
        "Web Components for custom elements",
    ),
    _rule("Template Element", r"<template\b", Category.HTML, "HTML template element"),
    _rule(
        "Details/Summary Elements",
        r"<details\b|<summary\b",
        Category.HTML,
        "HTML details and summary elements",
    ),
    _rule("Dialog Element", r"<dialog\b", Category.HTML, "HTML dialog element"),
    _rule("Picture Element", r"<picture\b", Category.HTML, "Responsive images"),
    _rule(
        "Video/Audio Elements (advanced)",
        r"<video.*controls|<audio.*controls",
        Category.HTML,
        "HTML video and audio elements with controls",
    ),
    _rule(
        "Form Elements (modern)",
        r'<input.*type="(?:email|tel|url|search|number|range|date|time'
        r'|datetime-local|color)"',
        Category.HTML,
        "Modern HTML input types",
    ),
    _rule(
        "Semantic HTML",
        r"<(?:main|section|article|aside|nav|header|footer|figure|figcaption)\b",
        Category.HTML,
        "Semantic HTML elements",
    ),
)

MODERN_JS: tuple[Rule, ...] = (
    _rule("Optional Chaining", r"\?\.", Category.SYNTAX, "Optional chaining (?.)"),
    _rule("Nullish Coalescing", r"\?\?", Category.SYNTAX, "Nullish coalescing (??)"),
    _rule("Dynamic Import", r"import\s*\(", Category.SYNTAX, "Dynamic import()"),
    _rule(
        "Top-level Await",
        r"^\s*await\s+",
        Category.SYNTAX,
        "Top-level await in modules",
        flags=re.MULTILINE,
    ),
    _rule("Private Fields", r"#\w+", Category.SYNTAX, "Private class fields"),
    _rule("Static Blocks", r"static\s*\{", Category.SYNTAX, "Static init blocks"),
    _rule(
        "Logical Assignment",
        r"\|\|=|&&=|\?\?=",
        Category.SYNTAX,
        "Logical assignment operators",
    ),
    _rule("Numeric Separators", r"\d+_\d+", Category.SYNTAX, "Numeric separators"),
    _rule(
        "String Methods",
        r"\.replaceAll\(|\.matchAll\(",
        Category.SYNTAX,
        "Modern string methods",
    ),
    _rule(
        "Array Methods",
        r"\.flat\(|\.flatMap\(|\.at\(",
        Category.SYNTAX,
        "Modern array methods",
    ),
    _rule(
        "Object Methods",
        r"Object\.fromEntries\(|Object\.hasOwn\(",
        Category.SYNTAX,
        "Modern object methods",
    ),
    _rule(
        "Promise Methods",
        r"Promise\.allSettled\(|Promise\.any\(",
        Category.SYNTAX,
        "Modern Promise methods",
    ),
    _rule("BigInt", r"\bBigInt\(|\b\d+n\b", Category.SYNTAX, "BigInt literals"),
    _rule(
        "WeakRef",
        r"WeakRef|FinalizationRegistry",
        Category.SYNTAX,
        "WeakRef and FinalizationRegistry",
    ),
)

FRAMEWORKS: tuple[Rule, ...] = (
    _rule(
        "React Hooks",
        r"useState|useEffect|useContext|useReducer|useMemo|useCallback|useRef"
        r"|useImperativeHandle|useLayoutEffect|useDebugValue",
        Category.FRAMEWORK,
        "React Hooks for state management",
        framework="react",
    ),
    _rule(
        "React Suspense",
        r"<Suspense|\blazy\(",
        Category.FRAMEWORK,
        "React Suspense for code splitting",
        framework="react",
    ),
    _rule(
        "React Concurrent Features",
        r"startTransition|useDeferredValue|useId|useSyncExternalStore",
        Category.FRAMEWORK,
        "React 18 concurrent features",
        framework="react",
    ),
    _rule(
        "Vue Composition API",
        r"setup\(|\bref\(|reactive\(|computed\(|watch\(|watchEffect\(",
        Category.FRAMEWORK,
        "Vue 3 Composition API",
        framework="vue",
    ),
    _rule(
        "Vue 3 Features",
        r"defineComponent|defineProps|defineEmits|defineExpose",
        Category.FRAMEWORK,
        "Vue 3 SFC macros",
        framework="vue",
    ),
    _rule(
        "Angular Signals",
        r"\bsignal\(|computed\(|\beffect\(",
        Category.FRAMEWORK,
        "Angular Signals",
        framework="angular",
    ),
    _rule(
        "Angular Standalone Components",
        r"standalone:\s*true|bootstrapApplication",
        Category.FRAMEWORK,
        "Angular standalone components",
        framework="angular",
    ),
    _rule(
        "Svelte Stores",
        r"writable\(|readable\(|derived\(",
        Category.FRAMEWORK,
        "Svelte stores",
        framework="svelte",
    ),
    _rule(
        "Svelte Actions",
        r"\buse:|action=",
        Category.FRAMEWORK,
        "Svelte actions",
        framework="svelte",
    ),
)

PWA: tuple[Rule, ...] = (
    _rule(
        "Service Worker",
        r"navigator\.serviceWorker",
        Category.PWA,
        "Service Worker for offline functionality",
    ),
    _rule(
        "Web App Manifest",
        r"manifest\.json|theme-color|display.*standalone",
        Category.PWA,
        "Web App Manifest for installation",
    ),
    _rule(
        "Push Notifications",
        r"PushManager|getSubscription|pushManager\.subscribe",
        Category.PWA,
        "Push notifications",
    ),
    _rule(
        "Background Sync",
        r"backgroundSync|sync\.register",
        Category.PWA,
        "Background sync",
    ),
    _rule(
        "Cache API",
        r"caches\.open|cache\.add|cache\.put",
        Category.PWA,
        "Cache API for offline storage",
    ),
    _rule(
        "IndexedDB",
        r"indexedDB|IDBDatabase|IDBTransaction",
        Category.PWA,
        "IndexedDB client-side storage",
    ),
)

ACCESSIBILITY: tuple[Rule, ...] = (
    _rule(
        "ARIA Attributes",
        r"aria-[a-z-]+",
        Category.ACCESSIBILITY,
        "ARIA attributes for screen reader support",
    ),
    _rule(
        "Semantic HTML",
        r"<(?:main|section|article|aside|nav|header|footer|figure|figcaption"
        r"|time|mark|progress|meter)\b",
        Category.ACCESSIBILITY,
        "Semantic HTML elements for better accessibility",
    ),
    _rule(
        "Focus Management",
        r"tabindex|\.focus\(|\.blur\(",
        Category.ACCESSIBILITY,
        "Focus management for keyboard navigation",
    ),
    _rule(
        "Color Contrast",
        r"(?<![-\w])color:\s*#[0-9a-fA-F]{3,6}|background-color:\s*#[0-9a-fA-F]{3,6}",
        Category.ACCESSIBILITY,
        "Color usage that may affect contrast",
    ),
    _rule(
        "Alt Text",
        r"<img\b(?![^>]*\balt=)[^>]*>",
        Category.ACCESSIBILITY,
        "Images without alt text",
    ),
    _rule(
        "Form Labels",
        r"<input\b(?![^>]*\baria-label)[^>]*>",
        Category.ACCESSIBILITY,
        "Form inputs without ARIA labelling",
    ),
)

# Feature names the downstream compatibility check knows how to look up.
CORE: tuple[Rule, ...] = (
    _rule("window.fetch", r"\bfetch\(", Category.API),
    _rule(
        "navigator.clipboard.writeText",
        r"navigator\.clipboard\.writeText\b",
        Category.API,
    ),
    _rule(
        "navigator.clipboard.readText",
        r"navigator\.clipboard\.readText\b",
        Category.API,
    ),
    _rule("WebSocket", r"\bnew\s+WebSocket\(", Category.API),
    _rule("dialog.element", r"<dialog\b", Category.HTML, flags=re.IGNORECASE),
    _rule("details.element", r"<details\b", Category.HTML, flags=re.IGNORECASE),
    _rule("summary.element", r"<summary\b", Category.HTML, flags=re.IGNORECASE),
    _rule("IntersectionObserver", r"\bnew\s+IntersectionObserver\(", Category.API),
    _rule("ResizeObserver", r"\bnew\s+ResizeObserver\(", Category.API),
    _rule("MutationObserver", r"\bnew\s+MutationObserver\(", Category.API),
    _rule("requestAnimationFrame", r"\brequestAnimationFrame\(", Category.API),
    _rule("requestIdleCallback", r"\brequestIdleCallback\(", Category.API),
    _rule("URL.createObjectURL", r"URL\.createObjectURL\(", Category.API),
    _rule("URL.revokeObjectURL", r"URL\.revokeObjectURL\(", Category.API),
    _rule("AbortController", r"\bnew\s+AbortController\(", Category.API),
    _rule("AbortSignal", r"\bAbortSignal\b", Category.API),
    _rule("Promise.allSettled", r"Promise\.allSettled\(", Category.API),
    _rule("Promise.any", r"Promise\.any\(", Category.API),
    _rule("BigInt", r"\bBigInt\(", Category.API),
    _rule("Optional chaining", r"\?\.", Category.SYNTAX),
    _rule("Nullish coalescing", r"\?\?", Category.SYNTAX),
    _rule("Dynamic import", r"import\s*\(", Category.SYNTAX),
    _rule("Top-level await", r"^\s*await\s+", Category.SYNTAX, flags=re.MULTILINE),
    _rule("css.has_pseudo", r":has\(", Category.CSS),
    _rule("css.container_queries", r"@container\b", Category.CSS),
    _rule("css.grid", r"display\s*:\s*grid", Category.CSS),
    _rule("css.flexbox", r"display\s*:\s*flex", Category.CSS),
    _rule("css.custom_properties", r"var\(--", Category.CSS),
    _rule("css.clamp", r"clamp\(", Category.CSS),
    _rule("css.min_max", r"\bmin\(|\bmax\(", Category.CSS),
    _rule(
        "css.logical_properties",
        r"margin-(?:inline|block)|padding-(?:inline|block)|border-(?:inline|block)",
        Category.CSS,
    ),
    _rule("css.backdrop_filter", r"backdrop-filter\s*:", Category.CSS),
    _rule("css.scroll_behavior", r"scroll-behavior\s*:", Category.CSS),
)

GROUPS: MappingProxyType[str, tuple[Rule, ...]] = MappingProxyType(
    {
        "modern_apis": MODERN_APIS,
        "modern_css": MODERN_CSS,
        "modern_html": MODERN_HTML,
        "modern_js": MODERN_JS,
        "frameworks": FRAMEWORKS,
        "pwa": PWA,
        "accessibility": ACCESSIBILITY,
        "core": CORE,
    }
)


def rules_in_group(group: str) -> tuple[Rule, ...]:
    return GROUPS.get(group, ())


def rules_for_framework(framework: str) -> tuple[Rule, ...]:
    """Every built-in rule tagged with *framework*, across all groups."""
    return tuple(
        rule
        for rules in GROUPS.values()
        for rule in rules
        if rule.framework == framework
    )


def catalog_stats() -> dict:
    """Count built-in rules per group and per framework."""
    stats: dict = {"total": 0, "by_group": {}, "by_framework": {}}
    for group, rules in GROUPS.items():
        stats["total"] += len(rules)
        stats["by_group"][group] = len(rules)
        for rule in rules:
            if rule.framework:
                stats["by_framework"][rule.framework] = (
                    stats["by_framework"].get(rule.framework, 0) + 1
                )
    return stats
