"""
Binding UI layer.

- mvvm: KeyPaths, notifying models and one-way bindings (including Qt widget properties)

Usage:
    from keypath_bindings.ui.mvvm import bind, notify_on_signal

    notify_on_signal(slider, "value")
    binding = bind((slider, "value"), (label, "text", lambda s, d, old, new: str(new)))
"""
