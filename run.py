from dotenv import load_dotenv
load_dotenv()

from chronicle import create_app

app = create_app()

if __name__ == '__main__':
    # Auto-reload and the debugger are for local development only
    import os
    debug = os.environ.get('FLASK_ENV') == 'development'
    app.run(debug=debug, host='0.0.0.0', port=int(os.environ.get('PORT', 5001)))
