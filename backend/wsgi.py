from promostock import create_app

app = create_app()
