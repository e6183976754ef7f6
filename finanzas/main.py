from finanzas.factory import create_app

# gunicorn entrypoint
app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=app.config["IS_DEV"])
