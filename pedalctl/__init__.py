"""Configure programmable USB-HID foot pedals."""
