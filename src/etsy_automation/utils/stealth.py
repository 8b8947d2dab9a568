"""Fingerprint-reduction script injected into every new document."""

from __future__ import annotations


# Runs before any page script via Page.addScriptToEvaluateOnNewDocument
STEALTH_SCRIPT = """
(() => {
    // Hide the automation flag
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });

    // Non-empty plugin list
    Object.defineProperty(navigator, 'plugins', {
        get: () => [
            {
                0: {type: 'application/x-google-chrome-pdf', suffixes: 'pdf', description: 'Portable Document Format'},
                description: 'Portable Document Format',
                filename: 'internal-pdf-viewer',
                length: 1,
                name: 'Chrome PDF Plugin'
            }
        ]
    });

    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });

    // Notifications permission query answers like a regular browser
    if (window.navigator.permissions && window.navigator.permissions.query) {
        const originalQuery = window.navigator.permissions.query.bind(window.navigator.permissions);
        window.navigator.permissions.query = (parameters) => (
            parameters && parameters.name === 'notifications'
                ? Promise.resolve({ state: Notification.permission })
                : originalQuery(parameters)
        );
    }

    // Minimal chrome runtime object
    window.chrome = window.chrome || {};
    window.chrome.runtime = window.chrome.runtime || {};

    // Drop DevTools-originated debug output
    const originalDebug = console.debug;
    console.debug = (...args) => {
        if (typeof args[0] === 'string' && args[0].includes('DevTools')) {
            return;
        }
        return originalDebug.apply(console, args);
    };
})();
"""

BROWSER_ARGS = [
    "--no-first-run",
    "--no-default-browser-check",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]
